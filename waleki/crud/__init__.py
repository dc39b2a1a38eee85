# CRUD package
