from .client import BindState, DirectoryClient, get_client  # noqa: F401
from .config import DirectoryConfig  # noqa: F401
from .diff import AttributeOperationSet, diff  # noqa: F401
from .exceptions import (  # noqa: F401
    ConfigurationError,
    DirectoryError,
    ErrorCode,
    InvalidUser,
    LdapIdentityError,
    StackedError,
)
from .hooks import ReadContext, ReadHook  # noqa: F401
from .resolver import IdentityResolver, ResolvedIdentity  # noqa: F401
from .results import ResultSet  # noqa: F401

__version__ = "1.0.0"
