from staync.auth.guards import auth_guard

__all__ = ["auth_guard"]
