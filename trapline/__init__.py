"""
Trapline - Structured, kind-discriminated fault handling.

Run a unit of work under a trap, then route whatever it raised to the
first handler declared for that fault kind, with guaranteed cleanup and
causal chains ("caused by").

Philosophy:
- Faults are typed values, matched by their exact class
- Structured throws and native exceptions arrive in the same shape
- First matching handler wins; a catch-all only sees leftovers
- Unclaimed failures are re-raised explicitly, or dropped by choice

Core exports:
- Fault: Base class of fault kinds
- Failure: Envelope holding a kind, its frames, and an optional cause
- trap / trapped: Protected execution
- TrapResult: Outcome of a trap, entry point for dispatch
- throw, throw_if, throw_if_none, throw_with_cause: Throw operations
- handler, handler_any, catch: Dispatch helpers

Example:
    ```python
    from trapline import trap, throw_if_none, ArgumentNullFault

    trap(lambda: throw_if_none("user", None)).when().on(
        ArgumentNullFault, lambda fault, failure: print(fault.param_name)
    ).cleanup(lambda: print("done"))
    ```
"""

import logging

__version__ = "0.1.0"

from .errors import (
    TraplineError,
    CleanupError,
    ChainOwnershipError,
    ConfigError,
)

from .config import (
    TraplineConfig,
    ConfigLoader,
    get_config,
    set_config,
    configure,
    reset_config,
)

from .core import (
    Fault,
    Failure,
    CHAIN_SEPARATOR,
)

from .domains import (
    ArgumentNullFault,
    ArgumentOutOfRangeFault,
    InvalidOperationFault,
    FileFault,
    NetworkFault,
)

from .matching import (
    MatchCache,
    match_stats,
    clear_match_cache,
)

from .stack import capture_stack

from .throwing import (
    throw,
    throw_if,
    throw_if_none,
    throw_with_cause,
    throw_argument_null,
    throw_argument_out_of_range,
    throw_invalid_operation,
    throw_file_error,
    throw_network_error,
)

from .handlers import (
    FaultHandler,
    KindHandler,
    CatchAllHandler,
    CatchBuilder,
    handler,
    handler_any,
    catch,
)

from .engine import (
    TrapResult,
    trap,
    trapped,
    on_failure,
    remove_listener,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Errors
    "TraplineError",
    "CleanupError",
    "ChainOwnershipError",
    "ConfigError",

    # Config
    "TraplineConfig",
    "ConfigLoader",
    "get_config",
    "set_config",
    "configure",
    "reset_config",

    # Core types
    "Fault",
    "Failure",
    "CHAIN_SEPARATOR",

    # Built-in kinds
    "ArgumentNullFault",
    "ArgumentOutOfRangeFault",
    "InvalidOperationFault",
    "FileFault",
    "NetworkFault",

    # Matching and stacks
    "MatchCache",
    "match_stats",
    "clear_match_cache",
    "capture_stack",

    # Throwing
    "throw",
    "throw_if",
    "throw_if_none",
    "throw_with_cause",
    "throw_argument_null",
    "throw_argument_out_of_range",
    "throw_invalid_operation",
    "throw_file_error",
    "throw_network_error",

    # Dispatch
    "FaultHandler",
    "KindHandler",
    "CatchAllHandler",
    "CatchBuilder",
    "handler",
    "handler_any",
    "catch",

    # Runtime
    "TrapResult",
    "trap",
    "trapped",
    "on_failure",
    "remove_listener",
]
