# Collectors package
