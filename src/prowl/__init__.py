"""Prowl — compile a framework build description into deployment routing config.

Turns the routing facts a web framework's build emits (rewrites, redirects,
headers, dynamic routes, locales, middleware, error pages) into the ordered,
phase-partitioned rule list a deployment platform's routing engine evaluates.

Quick start::

    import prowl

    prowl.build("my-app/")        # Reads build-description.json, writes config.json

Programmatic use::

    from prowl import BuildDescription, compile_routes

    table = compile_routes(BuildDescription(build_id="abc123"))
    print(table.to_json())

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0.dev0"
__all__ = [
    "BuildDescription",
    "ProwlConfig",
    "RouteTable",
    "__version__",
    "build",
    "compile_routes",
    "inspect",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import prowl`` fast while providing a clean top-level API.
    """
    if name == "ProwlConfig":
        from prowl.config import ProwlConfig

        return ProwlConfig

    if name == "BuildDescription":
        from prowl.description import BuildDescription

        return BuildDescription

    if name == "RouteTable":
        from prowl.routing.rules import RouteTable

        return RouteTable

    if name == "compile_routes":
        from prowl.routing.compiler import compile_routes

        return compile_routes

    if name == "build":
        from prowl.app import build

        return build

    if name == "inspect":
        from prowl.app import inspect

        return inspect

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
