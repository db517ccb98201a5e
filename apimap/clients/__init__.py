"""Request pipeline, dispatcher and transport collaborators."""
