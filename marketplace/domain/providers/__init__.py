"""Provider domain - applications, listing and dashboard"""
