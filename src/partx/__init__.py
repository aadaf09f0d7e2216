"""partx: fine-grained, dependency-tracked parts over a single state tree."""

from importlib.metadata import version as _version

__version__ = _version("partx")

from partx.constants import ALL_DEPENDENCIES, PART_ID, PartKind
from partx.errors import (
    CompositionError,
    InvalidListenerError,
    PartConfigError,
    PartError,
    UnknownPartError,
)
from partx.graph import PartGraph, default_graph
from partx.parts import (
    ComposedPart,
    Part,
    PrimitivePart,
    ProxyPart,
    SelectPart,
    StatefulPart,
    UpdatePart,
)
from partx.factory import part
from partx.reducer import combine_reducers, create_reducer
from partx.store import Store, create_store
from partx.enhancer import PartStore, create_enhancer
from partx.partitioner import Partitioner, create_part_store, create_partitioner
from partx.batch import BatchNotifier
from partx.utils import is_
# textual is not imported here, `import partx.textual` to opt in

__all__ = [
    "ALL_DEPENDENCIES",
    "PART_ID",
    "PartKind",
    "PartError",
    "PartConfigError",
    "CompositionError",
    "UnknownPartError",
    "InvalidListenerError",
    "PartGraph",
    "default_graph",
    "Part",
    "StatefulPart",
    "PrimitivePart",
    "ComposedPart",
    "SelectPart",
    "ProxyPart",
    "UpdatePart",
    "part",
    "combine_reducers",
    "create_reducer",
    "Store",
    "create_store",
    "PartStore",
    "create_enhancer",
    "Partitioner",
    "create_partitioner",
    "create_part_store",
    "BatchNotifier",
    "is_",
]
