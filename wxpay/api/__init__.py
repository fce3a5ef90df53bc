"""HTTP surface: the payment notification receiver."""
