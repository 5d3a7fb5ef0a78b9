"""
In-memory containers: sequences and the gene-by-taxon matrix store.
"""
