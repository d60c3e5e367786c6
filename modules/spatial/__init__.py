"""Lattice projection and voxel storage."""
