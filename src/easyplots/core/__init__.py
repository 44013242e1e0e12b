"""Array computations behind the plots: alignment, binning, grouping, warping and statistics."""
