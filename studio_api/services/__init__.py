"""
Service layer: tenant, user and role lifecycle, authentication flows and
the Google sign-in client. Route handlers stay thin and call into here.
"""
