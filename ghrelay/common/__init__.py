"""Small helpers shared across ghrelay packages."""
