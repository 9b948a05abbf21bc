"""
feature_resolver: derives the resolved feature-flag table for a runtime build.

Raw platform signals + a profile selector + boolean overrides go in; one
validated, frozen ResolvedConfiguration comes out.
"""

__version__ = "0.1.0"
RESOLVER_VERSION = "v0"
PACKAGE_NAME = "feature_resolver"
SCHEMA_VERSION = "0.1"
