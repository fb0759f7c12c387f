"""Domain models for the chat service layer.

Re-exports every public symbol so imports like
``from wheelchat.core.service.models import ChatContext`` work.
"""

from .constants import *  # noqa: F401, F403
from .context import *  # noqa: F401, F403
from .events import *  # noqa: F401, F403
from .service import *  # noqa: F401, F403
