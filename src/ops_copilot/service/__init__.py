"""HTTP service exposing the command pipeline and conversational exchanges."""
