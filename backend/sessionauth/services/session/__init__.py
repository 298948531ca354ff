"""Token lifecycle service: register, login, logout, refresh."""
