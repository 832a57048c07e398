"""
Sessionly - Sectioned server-side sessions

Server-side session state for web requests: a lifecycle that activates a
durable session store and a store of named sections layered on top of it,
with per-variable and per-section expiration.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- identifier: Session identifier generation and validation
- storage: Persistent store engines (memory, file, Redis)
- session: Lifecycle manager and section store
- transport: Cookie transport
- middleware: FastAPI integration
"""

__version__ = "1.0.0"
