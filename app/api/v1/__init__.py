"""ReelReviews HTTP API, version 1.

The mounted router lives in `app.api.v1.routers` and is included by
`app.main.create_app` under `settings.API_V1_STR`.
"""
