"""
Domain layer for the Bundler Service.

- settings: immutable namespace and backend configuration
- redirect: canonical-path redirects
- dispatcher: the request state machine tying routing, associators,
  conditional caching and packaging together

Import from the submodules directly; routing depends on settings, and the
dispatcher depends on routing.
"""
