"""Application services.

Services coordinate the pure release engine with the hosting adapter and
the snapshot sources.
"""
