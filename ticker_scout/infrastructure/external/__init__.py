# Clients for external APIs
