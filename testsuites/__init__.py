"""
Test suites package.

`testsuites` stays importable so that:
  - the UI framework can be loaded as a pytest plugin
    (``testsuites.ui_testing.framework.pytest_plugin``)
  - programmatic runners (e.g., `run_tests.py`) and SuiteRunner scripts
    can import the framework
  - unit tests can share fakes (``testsuites.unit.fakes``)
"""
