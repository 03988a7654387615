import logging

from .scanner import Scanner, ScanResult
from .records import FileRecord, SizeGroup, HashGroup, ScanError, ScanErrorKind, ScanListener
from .report.reporter import ClusterReporter
from .report.store import ReportManifest, ReportStore
from .utils.processor import Processor

# Diagnostics reach stderr through ClusterReporter only
logging.getLogger(__name__).addHandler(logging.NullHandler())
