"""Tests for the ravenlite package structure."""


def test_package_imports():
    """Test that main package can be imported."""
    import ravenlite
    assert ravenlite.__version__ == "0.1.0"


def test_public_api():
    """Test that the store types are exported from the top-level package."""
    from ravenlite import DocumentStore, DocumentStoreBase, create_document_store

    assert issubclass(DocumentStore, DocumentStoreBase)
    assert callable(create_document_store)


def test_test_driver_subpackage():
    """Test that test_driver subpackage exists."""
    import ravenlite.test_driver
    assert ravenlite.test_driver.RavenServerRunner is not None


def test_client_subpackage():
    """Test that client subpackage exists."""
    import ravenlite.client
    assert ravenlite.client is not None
