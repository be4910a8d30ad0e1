"""Calendar provider integrations"""
