"""
push-back: commit files changed by a workflow and push them back.

The push goes through a temporary token-authenticated remote and is skipped
when the target branch moved since checkout, unless force push is enabled.
"""

__version__ = "1.0.0"

from .git.publisher import PushOutcome
from .workflow import PushBackWorkflow, RunResult

__all__ = ["PushOutcome", "PushBackWorkflow", "RunResult", "__version__"]
