"""HTTP routers for the site."""
