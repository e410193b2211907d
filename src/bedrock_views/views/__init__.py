"""
Estágios de montagem de views: enriquecimento, join, resolução de campos,
ordenação, agregação, montagem e exportação plana.
"""
