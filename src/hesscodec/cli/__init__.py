"""Command-line tools for hesscodec."""
