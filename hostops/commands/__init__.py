from . import container, facts, package, pod, service

__all__ = ['container', 'facts', 'package', 'pod', 'service']
