from .compiler import Compiler, HttpCompiler, LocalCompiler, build_compiler
from .pipeline import ENTRY_POINT, IMPORTS, ExecutionPipeline
from .sandbox import TEST_RESULT_DECORATION, LocalSandbox, Sandbox, parse_test_result
from .types import CompileRequest, CompileResult

__all__ = [
    "Compiler",
    "CompileRequest",
    "CompileResult",
    "ENTRY_POINT",
    "ExecutionPipeline",
    "HttpCompiler",
    "IMPORTS",
    "LocalCompiler",
    "LocalSandbox",
    "Sandbox",
    "TEST_RESULT_DECORATION",
    "build_compiler",
    "parse_test_result",
]
