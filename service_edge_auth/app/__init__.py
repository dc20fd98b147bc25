"""
Edge auth gate for the multi-tenant static hosting platform.

Runs as a CloudFront viewer-request function in front of the content bucket:

- app.lambda_handler: Lambda@Edge entrypoint.
- app.main: FastAPI host that stands in for CloudFront during development.
- app.edge: request model, cookies, error pages, and the gate state machine.
- app.config / app.jwks / app.validation / app.oauth / app.state / app.routing:
  the collaborators the gate consults for each request.

Design notes:
- Module import must not perform network calls. The config bundle and the
  signing keys are fetched lazily on the first request of a container.
- The gate is stateless apart from those two read-mostly caches.
"""
