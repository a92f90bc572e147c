"""Money and currency services used by the cart pricing engine."""
