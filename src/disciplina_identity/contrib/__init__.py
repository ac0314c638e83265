"""Framework integrations for disciplina-identity."""
