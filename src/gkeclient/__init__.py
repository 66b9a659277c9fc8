import warnings

# Suppress Google SDK FutureWarning messages about Python version deprecation
warnings.filterwarnings("ignore", category=FutureWarning, module="google.api_core")
warnings.filterwarnings("ignore", category=FutureWarning, module="google.cloud")
