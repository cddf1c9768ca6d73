from sinmungo.db.base import Base  # noqa: F401

from . import user            # noqa: F401
from . import issue           # noqa: F401
from . import status_history  # noqa: F401
from . import attachment      # noqa: F401
from . import comment         # noqa: F401
from . import support         # noqa: F401
from . import report          # noqa: F401
from . import rejection       # noqa: F401
