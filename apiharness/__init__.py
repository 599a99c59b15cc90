"""
API test harness package.

`apiharness.framework` holds the reusable client, assertion and validation
components; `apiharness.unit` and `apiharness.api_testing.tests` hold the
suites that exercise them.
"""

__version__ = "1.0.0"
