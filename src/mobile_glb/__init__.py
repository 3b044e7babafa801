"""
Mobile GLB Optimizer
====================
Shrinks a GLB scene for mobile delivery and reports what changed.

Pipeline (fixed order):
- Dedup: merge identical accessors, images, textures, materials and meshes
- Prune: drop everything unreachable from the scene roots
- Resample: downscale textures to max 1024px
- Compress: re-encode textures as WebP (EXT_texture_webp)
- Draco: geometry compression via gltf-transform (edgebreaker, quantized)

Usage:
    CLI:
        mobile-glb
        mobile-glb models/chair.glb -o models/chair_mobile.glb
        mobile-glb model.glb --max-texture 2048 --quality 90

    Python:
        from mobile_glb import main
        main()
"""

from mobile_glb.cli import __version__, main

__all__ = ["__version__", "main"]
