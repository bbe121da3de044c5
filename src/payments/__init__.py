"""Payment provider integrations: Pakasir, iPaymu, Tokopay and PayPal."""
