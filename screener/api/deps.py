# =============================================================================
# API Dependencies — Service Injection
# =============================================================================
#
# Route handlers receive the screening services through FastAPI's DI, so
# tests swap in a container built with fake providers:
#
#   app.dependency_overrides[get_screening_services] = lambda: services
# =============================================================================

from screener.services.container import ScreeningServices, get_services


def get_screening_services() -> ScreeningServices:
    """FastAPI dependency returning the process-wide screening services."""
    return get_services()
