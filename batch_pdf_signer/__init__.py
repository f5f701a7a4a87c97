"""
Batch PDF Signer

Signs many PDF documents in one run by:
1. Expanding input patterns into concrete files
2. Deriving an output path for every input file
3. Handing each input/output pair to a signer
4. Reporting one combined status for the whole batch
"""

from .batch import (
    BatchOrchestrator,
    BatchResult,
    ProcessStatus,
    ResolvedFile,
    SigningConfig,
    run_batch,
)
from .naming import OutputNaming, build_output_path
from .paths import is_readable, resolve

__version__ = "1.0.0"

__all__ = [
    "BatchOrchestrator",
    "BatchResult",
    "OutputNaming",
    "ProcessStatus",
    "ResolvedFile",
    "SigningConfig",
    "build_output_path",
    "is_readable",
    "resolve",
    "run_batch",
]
