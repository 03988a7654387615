"""Tests for the duplicate clustering pipeline.

| Test File                  | Test Classes                                 | Tested Constructs                         |
|----------------------------|----------------------------------------------|-------------------------------------------|
| test_find_duplicates.py    | TraverserTest, SizeGrouperTest,              | Traverser, SizeGrouper, HashGrouper,      |
|                            | HashGrouperTest, FindDuplicatesPipelineTest  | do_find_duplicates                        |
"""
