"""paygate: request gating and payment-callback validation for the wallet API."""
