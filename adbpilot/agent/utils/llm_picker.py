import importlib
import logging
from typing import Any
from llama_index.core.llms.llm import LLM

logger = logging.getLogger("adbpilot")

# Providers whose module name can't be derived from the class name
_MODULE_OVERRIDES = {
    "OpenAILike": "openai_like",
    "GoogleGenAI": "google_genai",
}


def provider_module(provider_name: str) -> str:
    """Map a provider class name to its ``llama_index.llms`` submodule name."""
    if provider_name in _MODULE_OVERRIDES:
        return _MODULE_OVERRIDES[provider_name]
    lower_provider_name = provider_name.lower()
    # HuggingFaceLLM -> huggingface
    if lower_provider_name.endswith("llm"):
        return lower_provider_name[:-3].replace("-", "_")
    return lower_provider_name.replace("-", "_")


def load_llm(provider_name: str, **kwargs: Any) -> LLM:
    """
    Dynamically loads and initializes a LlamaIndex LLM.

    Imports `llama_index.llms.<provider module>`, finds the class named
    `provider_name` within that module, verifies it's an LLM subclass,
    and initializes it with kwargs.

    Args:
        provider_name: The case-sensitive name of the provider and the class
                       (e.g., "Groq", "OpenAI", "Ollama").
        **kwargs: Keyword arguments for the LLM class constructor. None values are dropped.

    Returns:
        An initialized LLM instance.

    Raises:
        ValueError: If provider_name is empty.
        ModuleNotFoundError: If the provider's module cannot be found.
        AttributeError: If the class `provider_name` is not found in the module.
        TypeError: If the found class is not a subclass of LLM or if kwargs are invalid.
    """
    if not provider_name:
        raise ValueError("provider_name cannot be empty.")
    if provider_name == "OpenAILike":
        kwargs.setdefault("is_chat_model", True)

    module_provider_part = provider_module(provider_name)
    module_path = f"llama_index.llms.{module_provider_part}"
    install_package_name = f"llama-index-llms-{module_provider_part.replace('_', '-')}"

    try:
        logger.debug(f"Attempting to import module: {module_path}")
        llm_module = importlib.import_module(module_path)
    except ModuleNotFoundError:
        logger.error(f"Module '{module_path}' not found. Try: pip install {install_package_name}")
        raise ModuleNotFoundError(
            f"Could not import '{module_path}'. Is '{install_package_name}' installed?"
        ) from None

    try:
        llm_class = getattr(llm_module, provider_name)
    except AttributeError:
        logger.error(f"Class '{provider_name}' not found in module '{module_path}'.")
        raise AttributeError(
            f"Could not find class '{provider_name}' in module '{module_path}'. Check spelling and capitalization."
        ) from None

    if not isinstance(llm_class, type) or not issubclass(llm_class, LLM):
        raise TypeError(f"Class '{provider_name}' found in '{module_path}' is not a valid LLM subclass.")

    filtered_kwargs = {k: v for k, v in kwargs.items() if v is not None}

    logger.debug(f"Initializing {llm_class.__name__} with kwargs: {list(filtered_kwargs.keys())}")
    try:
        llm_instance = llm_class(**filtered_kwargs)
    except TypeError as e:
        logger.error(f"Error initializing {provider_name}: {e}")
        raise
    logger.debug(f"Successfully loaded and initialized LLM: {provider_name}")
    return llm_instance
