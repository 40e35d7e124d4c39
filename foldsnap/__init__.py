"""FoldSnap: folder hierarchy and aggregate statistics for a media library."""
