"""Pipewright: declarative CI/CD pipeline deployment."""
