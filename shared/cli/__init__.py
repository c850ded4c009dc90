"""Command-line helpers shared by agent front ends."""
