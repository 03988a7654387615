"""Tests for report module.

| Test File                  | Test Classes                 | Tested Constructs                  | Tested Functionalities                 |
|----------------------------|------------------------------|------------------------------------|----------------------------------------|
| test_reporter.py           | ClusterReporterTest          | ClusterReporter                    | Cluster output, summary, diagnostics   |
| test_report_store.py       | ReportStoreTest              | ReportStore, ReportManifest        | msgpack write/read, non-UTF-8 paths    |
"""
