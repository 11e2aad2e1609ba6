"""
Module Bundler Gateway service package.

The gateway fronts a backend store of script modules and serves either a
single module (direct proxy) or a JSONP bundle of associated modules when
the request carries a `callback` parameter.

Structure:
- app.main: FastAPI app, namespace routes and startup wiring.
- app.routing: URL parsing, path normalisation and namespace resolution.
- app.associators: Bundle membership and canonical paths.
- app.caching: Conditional request evaluation and header merging.
- app.packaging: JSONP bundle serialisation.
- app.domain: Settings, redirects and the response dispatcher.
- app.adapters: Backend fetch collaborator and manifest client.
"""
