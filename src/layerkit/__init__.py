"""
layerkit - dependency layers for serverless Node.js functions

layerkit decides which npm packages each serverless layer must carry,
installs them into the layer's ``nodejs`` folder, and rewrites the
generated CloudFormation template so functions reference the versioned
layer artifact.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
