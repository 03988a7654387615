"""Report module for presenting scan results.

This package contains:
- reporter: ClusterReporter, the text output of duplicate clusters and wasted space
- store: ReportStore and ReportManifest for the machine-readable msgpack report
"""
