"""Build, credential setup and deployment for Go wasm modules on Cloudflare.

``wasmflare setup`` trades a broad bootstrap token for a Pages:Edit token bound
to one account. ``wasmflare build`` compiles the module and generates the
worker script that dispatches fetch/scheduled/queue/Pages triggers to it.
``wasmflare deploy`` uploads both files as a Pages deployment.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
