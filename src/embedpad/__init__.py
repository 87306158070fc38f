from .context import EmbedContext, SourceEditor
from .document import SourceDocument
from .elements import EmbedElements, MemoryElement
from .embed import Embed, RunOutcome
from .errors import CompileFailed, EmbedError, TabNotFound
from .events import Broadcast, ConsoleLine, Stderr, Stdout, TestResult
from .execution import ExecutionPipeline, HttpCompiler, LocalCompiler, LocalSandbox
from .reconciler import DirtyTracker, Reconciler
from .settings import EmbedSettings, SandboxPolicy
from .tabs import Tab, TabController

__all__ = [
    "Broadcast",
    "CompileFailed",
    "ConsoleLine",
    "DirtyTracker",
    "Embed",
    "EmbedContext",
    "EmbedElements",
    "EmbedError",
    "EmbedSettings",
    "ExecutionPipeline",
    "HttpCompiler",
    "LocalCompiler",
    "LocalSandbox",
    "MemoryElement",
    "Reconciler",
    "RunOutcome",
    "SandboxPolicy",
    "SourceDocument",
    "SourceEditor",
    "Stderr",
    "Stdout",
    "TabController",
    "TabNotFound",
    "Tab",
    "TestResult",
]
