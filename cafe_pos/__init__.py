"""Single-register cafe order taking with receipt printing."""
