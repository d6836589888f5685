# path: src/runtime/__init__.py

"""
Runtime support package for blocknav.

Holds the glue shared by the navigation core and its entrypoints:
- logging_config: root logger setup for tools and demos
- failure_mitigation: navigation failures -> monitoring events
"""
