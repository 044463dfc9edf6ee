"""Remote API clients: Tesla vehicle API and ChargePoint."""
