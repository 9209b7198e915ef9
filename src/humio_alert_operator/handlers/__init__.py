"""Handler modules for CRD resources.

Handler modules register themselves with kopf through decorators when
imported; ``main`` imports them.
"""
