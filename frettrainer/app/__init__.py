"""Host-facing layer: flow controller, progressive session, presets and CLI."""
