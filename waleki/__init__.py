# Waleki telemetry backend
