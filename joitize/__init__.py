import importlib

mod = "joitize"
class LazyLoader:
    """
    Lazy loader for the joitize functions to speed up startup time.
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, attr_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, attr_name)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the public names and their corresponding module paths
_mappings = {
    "convert_joi_to_json_schema": (f"{mod}.joitojsons", "convert_joi_to_json_schema"),
    "convert_joi_to_json_schema_string": (f"{mod}.joitojsons", "convert_joi_to_json_schema_string"),
    "JoiJsonSchemaTranslator": (f"{mod}.joitojsons", "JoiJsonSchemaTranslator"),
    "JoiToJsonSchemaConverter": (f"{mod}.joitojsons", "JoiToJsonSchemaConverter"),
    "DescribedSchema": (f"{mod}.joitojsons", "DescribedSchema"),
    "get_version": (f"{mod}.joitojsons", "get_version"),
    "get_supported_version": (f"{mod}.joitojsons", "get_supported_version"),
    "JoiToJsonSchemaError": (f"{mod}.describe", "JoiToJsonSchemaError"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
