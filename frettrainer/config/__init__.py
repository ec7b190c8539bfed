from .settings import (  # noqa: F401
    AppConfig,
    AttemptConfig,
    FeedbackConfig,
    FlowConfig,
    GeneratorConfig,
    ProgressiveConfig,
    QuizConfig,
    merged,
)
from .config import load_config, validate_config  # noqa: F401
