from setuptools import setup, find_packages

setup(
    name='PyWeave',  # 包名
    version='0.1',  # 包的版本
    description='路由匹配与钩子分发引擎',  # 简短描述
    long_description=open('README.md', encoding='utf-8').read(),  # 长描述，从README文件读取
    long_description_content_type='text/markdown',  # 长描述的内容类型
    packages=find_packages(exclude=('tests', 'tests.*', 'docs')),  # 项目中要包括的包
    install_requires=[  # 运行时依赖列表
        'pydantic>=2',
        'Jinja2>=3',
        'PyYAML>=6',
        'redis>=4',
    ],
    extras_require={  # 额外的依赖列表
        'test': ['pytest', 'coverage'],
    },
    classifiers=[  # 分类器列表
        'Programming Language :: Python :: 3',
    ],
    python_requires='>=3.8',  # 支持的Python版本范围
)
