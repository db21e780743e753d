"""Flask front end for the amortization calculator."""
