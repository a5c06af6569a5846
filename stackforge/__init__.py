"""stackforge -- scaffold a Next.js + NestJS workspace with one command."""

__version__ = "0.1.0"
