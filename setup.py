import setuptools

with open("README.md", "r", encoding = "utf-8") as fh:
	long_description = fh.read()

setuptools.setup(
	name = "pywfa",
	version = "v0.1.0",
	author = "Mans Hulden",
	author_email = "mans.hulden@colorado.edu",
	description = "Weighted finite-state automata over element distributions",
	long_description = long_description,
	long_description_content_type = "text/markdown",
	url = "https://github.com/mhulden/pywfa",
	project_urls = {
		"Bug Tracker": "https://github.com/mhulden/pywfa/issues",
	},
	classifiers = [
		"Programming Language :: Python :: 3",
		"License :: OSI Approved :: Apache Software License",
		"Operating System :: OS Independent",
	],
	package_dir = {"": "src"},
	packages = setuptools.find_packages(where="src"),
	python_requires = ">=3.8",
	install_requires = [
		"graphviz", "numpy"
	]
)
