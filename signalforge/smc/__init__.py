"""Smart-money structure detection."""
