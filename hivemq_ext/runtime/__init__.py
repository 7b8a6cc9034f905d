from .home import prepare_home, run_command, run_hivemq
from .testing import prepare_extension_test, run_integration_tests

__all__ = [
    "prepare_home",
    "run_command",
    "run_hivemq",
    "prepare_extension_test",
    "run_integration_tests",
]
