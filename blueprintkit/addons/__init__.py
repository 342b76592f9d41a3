"""Capability bundles and adapters built on the public Blueprint interface.

Adapters are not imported here so that importing one (for example the FastAPI
route adapter) never pulls in another adapter's dependencies. Import the module
you need directly:

- `blueprintkit.addons.validation`: pydantic-backed input/result validators
- `blueprintkit.addons.request`: JSON HTTP requests via `requests`
- `blueprintkit.addons.route`: FastAPI request handler
- `blueprintkit.addons.hook`: reactive loading/result/error state for UIs
"""
