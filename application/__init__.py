"""
Application Layer for the Exercise Identity service.

This package contains:
- ports/: Abstract repository interfaces (what the use cases need)
- use_cases/: Master registry, link management, suggestions, bulk linking, migration
- exceptions: Errors shared by use cases, adapters and routers
"""
