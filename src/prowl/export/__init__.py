"""Export layer — build-output bookkeeping and configuration output.

Derives the compiler's caller-supplied facts from the framework's build
outputs and writes the compiled route table to disk.
"""

from prowl.export.outputs import (
    BuildFacts,
    BuildOutputs,
    FunctionOutput,
    OutputType,
    PrerenderOutput,
    StaticFile,
    derive_build_facts,
    operation_type,
)
from prowl.export.writer import WrittenConfig, write_config

__all__ = [
    "BuildFacts",
    "BuildOutputs",
    "FunctionOutput",
    "OutputType",
    "PrerenderOutput",
    "StaticFile",
    "WrittenConfig",
    "derive_build_facts",
    "operation_type",
    "write_config",
]
