"""batchstore: reactive state containers with batched, automatic notifications."""

from importlib.metadata import version as _version

__version__ = _version("batchstore")

from batchstore._scheduler import FlushScheduler, call_soon, get_scheduler, set_scheduler
from batchstore.tracked import TrackedView, is_trackable, track, unwrap
from batchstore.writable import Readable, Writable, get
from batchstore.action import bind_action
from batchstore.container import Builder, Container, ValueAccessor, store
# textual is not auto-imported, opt-in only

__all__ = [
    "store",
    "Builder",
    "Container",
    "ValueAccessor",
    "Writable",
    "Readable",
    "get",
    "TrackedView",
    "track",
    "unwrap",
    "is_trackable",
    "FlushScheduler",
    "bind_action",
    "set_scheduler",
    "get_scheduler",
    "call_soon",
]
