"""Canvas-side pieces of the editor: coordinates, region selection, masks, text overlays."""
