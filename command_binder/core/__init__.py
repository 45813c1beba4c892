"""Core command binding primitives.

Modules in this package should be framework-agnostic where possible: the
command registry, serializer, markers, identity and authorization chain
know nothing about HTTP. Only ``binder``, ``middleware`` and ``validation``
touch FastAPI.
"""

