# Listing page: candidate discovery
from .candidates import CandidateDiscovery, ProductCard

__all__ = ['CandidateDiscovery', 'ProductCard']
