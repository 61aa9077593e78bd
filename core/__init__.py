from .errors import (
    BridgeError,
    InternalError,
    InvalidParamsError,
    MethodNotFoundError,
    ScriptExecutionError,
    ScriptReportedError,
    ScriptTimeoutError,
    ThingsNotRunningError,
)
from .naming import NAMING_CONTRACT, NAMING_CONTRACT_VERSION, FieldMapping, internal_name_for
from .parameters import map_parameters
from .validation import (
    validate_array,
    validate_date,
    validate_enum,
    validate_integer,
    validate_string,
)

__all__ = [
    "BridgeError",
    "InternalError",
    "InvalidParamsError",
    "MethodNotFoundError",
    "ScriptExecutionError",
    "ScriptReportedError",
    "ScriptTimeoutError",
    "ThingsNotRunningError",
    "NAMING_CONTRACT",
    "NAMING_CONTRACT_VERSION",
    "FieldMapping",
    "internal_name_for",
    "map_parameters",
    "validate_array",
    "validate_date",
    "validate_enum",
    "validate_integer",
    "validate_string",
]
